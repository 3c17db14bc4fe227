"""Weather.io: daily forecasts with shared, versioned manual overrides."""
