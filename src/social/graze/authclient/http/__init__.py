"""
Resilient HTTP Transport

Every protocol exchange made by the auth client is funneled through this
package. It is composed as a pipeline:

- request.py: Request builder and the immutable, replayable request body
- transport.py: Single network round trip through the shared client session
- manager.py: Retry controller and the public send_post/send_get surface
- chain.py: Per-attempt middleware (metrics, debug logging)
- client.py: Explicitly owned HTTP client factory wrapping one ClientSession
- cancellation.py: Cancellation token aborting an in-flight network wait
- response.py: Immutable response value produced once per attempt

Retry policy:
1. A 200 response is returned immediately
2. 5xx responses, timeouts, cancellations and connection failures are retried
   once after a flat one second delay
3. Any other status is returned to the caller as data
4. Persisting failures surface as classified errors from ``errors``
"""
