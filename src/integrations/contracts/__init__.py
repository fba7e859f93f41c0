"""
Contracts (data models).

This folder defines the shapes exchanged with external systems and between
layers:
- interfaces.py: normalized menu, shop, credential and order-status types,
  plus the CatalogAdapter interface
- square.py / clover.py: provider wire payloads (pydantic)
- menus.py: on-disk menu cache format
- orders.py: stored order records

Adapters validate provider payloads against the wire models, then emit only
the normalized types. Nothing outside clients/ sees a provider payload.
"""
