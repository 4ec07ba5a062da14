# Route modules, one per resource group: health, pricing, catalog, scenarios, guest.
