# Copyright 2025 Softwell S.r.l.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Tests for path joining and normalisation."""

import pytest

from genro_layers import join_path, normalize_path


def test_join_trims_and_collapses_separators():
    assert join_path("/a/", "//b", "", "c/") == "/a/b/c"


@pytest.mark.parametrize(
    "segments, expected",
    [
        ((), ""),
        (("", "/", "//"), ""),
        (("a",), "/a"),
        (("/a//b",), "/a/b"),
        ((None, "x"), "/x"),
        (("/api", ":id"), "/api/:id"),
    ],
)
def test_join_edge_cases(segments, expected):
    assert join_path(*segments) == expected


def test_normalize_converts_colon_params():
    assert normalize_path("//users/:userId//posts") == "/users/{userId}/posts"
    assert normalize_path("/a/:id/b/:name") == "/a/{id}/b/{name}"


def test_normalize_keeps_plain_paths():
    assert normalize_path("/plain/path") == "/plain/path"
    assert normalize_path("") == ""
