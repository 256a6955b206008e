from __future__ import annotations

import asyncio

from genro_layers import Middleware, create, execute_chain, route


class Response:
    def __init__(self):
        self.headers_sent = False
        self.body = None

    def send(self, body):
        self.body = body
        self.headers_sent = True


def authenticate(request, response, next):
    print("  authenticate")
    request["user"] = "alice"
    next()


auth = Middleware(authenticate, doc={"security": [{"BearerAuth": []}]})

# Billing module, built on its own and shared by reference
billing = route("/billing")
billing.middleware(auth)
billing.get("/invoices", doc_summary="List invoices").handler(
    lambda request, response, next: response.send(["Inv-001", "Inv-002"])
)

# Inventory module
inventory = route("/inventory")
inventory.get("/:item_id", doc_summary="Stock level").handler(
    lambda request, response, next: response.send({"item": request["params"]["item_id"], "qty": 42})
)

if __name__ == "__main__":
    api = create("/api")
    api.define_openapi(info={"title": "Enterprise", "version": "1.0.0"})
    api.middleware(auth)  # same instance as billing's: runs once per request
    api.by(billing)
    api.by(inventory)

    print("--- Service Composition Demo ---")
    for r in api.routes:
        print(f"#{r.index} {r.method.upper():6} {r.path:28} handlers={len(r.handlers)} doc={r.doc}")

    print("\nSimulated GET /api/billing/invoices:")
    invoices = api.routes[0]
    response = Response()
    asyncio.run(execute_chain(invoices.handlers, {}, response))
    print(f"  body: {response.body}")

    print("\nOpenAPI paths:")
    for path, operations in api.openapi()["paths"].items():
        print(f" - {path}: {sorted(operations)}")
