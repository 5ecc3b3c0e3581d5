"""Developer tooling: debug instrumentation and the offline replay CLI."""
