"""Profile relay server: event relay and identify reconciliation."""
