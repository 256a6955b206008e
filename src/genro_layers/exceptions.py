# Copyright 2025 Softwell S.r.l. - All Rights Reserved
# SPDX-License-Identifier: Apache-2.0
"""Exceptions for Genro Layers.

Building and flattening layers never raise for well-formed input; misuse of
the builders raises ``TypeError``/``ValueError`` at the call site. This module
only holds lookup errors.
"""

__all__ = ["NotFound"]


class NotFound(Exception):
    """Raised when a requested route does not exist.

    Attributes:
        selector: The selector in format "prefix#index".
    """

    def __init__(self, selector: str) -> None:
        self.selector = selector
        super().__init__(f"Route '{selector}' not found")
