"""
Proxy service package for the Clash Access layer.

The proxy fronts a single upstream API (Clash of Clans), providing:
- Tag normalization for player/clan identifiers
- Bearer credential injection on every upstream call
- Short-lived caching of successful GET responses
- Bounded retries with backoff on transport failures

Structure:
- app.main: FastAPI app, routes, and middleware wiring.
- app.tags: Tag validation and normalization.
- app.caching: Cache store interface with memory and Redis backends.
- app.adapters: HTTP client for the upstream API.
- app.domain: Request/outcome models, the response resolver, route table
  and aggregate computations.
"""
