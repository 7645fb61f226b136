"""
Pytest configuration for voice_history tests.
"""


def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests that write multi-megabyte probe payloads"
    )
