"""
Unit tests for hardy.

Test individual components in isolation:
- Backoff parameters and interval calculation
- Attempt runner (request copies, classification, body release)
- Retry orchestrator (state machine, fallback, exhaustion)
- Cancellation gate (deadlines, explicit cancel, in-flight attempts)
- Client facade and configuration
"""
