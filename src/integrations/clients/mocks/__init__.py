"""
Mock integration clients.

These clients return canned (but realistic) menus and order statuses without
calling any external API. They are used when:
- POS sandbox credentials are not available
- We want to run the API or scripts end-to-end offline

Important:
- Mock clients must follow the SAME CatalogAdapter interface as real HTTP clients.

Switching to real:
Set `adapters: real` in config/sync_config.yml.
"""
