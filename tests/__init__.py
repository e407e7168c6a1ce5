"""regforms test suite.

Test organization:
- unit/: ambient layer (errors, logging, settings, storage, retries,
  transport, catalog) and the CLI
- state/: engine components (declaration, cascades, validation policy,
  panels, dirty tracking, persistence, FormState, submission)
- forms/: the team and tournament forms end to end
"""
