"""
Graze Auth Client

This package implements the client side of OAuth-style token flows against a
security token service (STS). Every protocol exchange made by the client
(authorization code redemption, refresh token exchange, tenant and metadata
discovery) is carried by the resilient HTTP transport in ``http``.

Key Components:
- http: Request building, single-attempt transport, and the retrying manager
- errors: Classified error types and the factory used to construct them
- context: Per-call request context carrying correlation data and logging
- config: Pydantic settings loaded from the environment
- metrics: Vendor-agnostic metrics client used by the transport
- uri: Helpers for combining endpoints and appending query parameters
- cli: Diagnostics command line for issuing a single request

Transport Overview:
1. A caller hands an endpoint, headers, an optional body, a request context
   and an optional cancellation token to ``HttpManager``.
2. The manager clones the body, sends one attempt through ``TransportExecutor``
   and classifies the outcome.
3. Transient failures (5xx, timeouts, connection failures) are retried exactly
   once after a flat delay, then surface as classified errors.
"""
