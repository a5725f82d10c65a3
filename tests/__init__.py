"""
Test suite for gallerypub.

- Unit tests for models, services and the CLI
- Pipeline tests publishing real images against fake object storage
"""
