"""
Real HTTP integration clients.

These clients talk to real external systems via httpx:
- credential backend (getMerchantTokens / getCloverCredentials)
- Square catalog, orders and locations APIs
- Clover categories, items, modifier groups, orders and opening hours

Important:
- Must implement the same CatalogAdapter interface as the mock clients
- Must return data shaped according to src/integrations/contracts/*

Switching:
The selection of mock vs real clients happens in src/integrations/clients/factory.py only.
"""
