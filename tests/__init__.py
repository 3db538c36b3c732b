# =============================================================================
# tests/ - Test Suite
# =============================================================================
# This package contains all tests for the Sayso accounts API:
# - test_models.py: Unit tests for Pydantic model validation
# - test_session_store.py: Cookie store, encoding and chunking
# - test_session_exchange.py: OAuth callback handling
# - test_deactivation.py: Account deactivation
# - test_stores.py: Supabase-backed stores against a mocked client
# - test_api.py: Endpoint tests through TestClient
#
# Run tests with: pytest
# =============================================================================
