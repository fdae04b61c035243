"""Infrastructure layer: adapters, stubs, observability and metrics."""
