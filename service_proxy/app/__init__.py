"""
Odds proxy service package.

The proxy fronts a single upstream sportsbook JSON API, enforcing:
- Caching: a short-lived fresh store and a longer-lived stale fallback
- Circuit-breaking per endpoint template after repeated upstream failures
- Human-like pacing: jittered delays and an hourly outbound budget
- Identity rotation and cookie continuity on outbound calls

Structure:
- app.main: FastAPI app, routes, and wiring.
- app.settings: Environment-driven configuration.
- app.adapters: HTTP client for the upstream host.
- app.caching: Cache keys, the dual-horizon store and request coalescing.
- app.domain: The orchestration pipeline and the route table.
- app.identity: Outbound identity rotation.
- app.pacing: Delay scheduling and the request budget.
- app.session: Cookie jar shared by all outbound calls.
"""
