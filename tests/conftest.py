"""
pytest configuration and fixtures for the commissioning tools tests.

Provides:
- tools/ on sys.path
- Hypothesis property-based testing profiles
- Scripted random sources for deterministic generator tests
"""

import os
import sys
from pathlib import Path

import pytest
from hypothesis import settings, Verbosity, Phase

# Add project paths
sys.path.insert(0, str(Path(__file__).parent.parent / "tools"))


# Default profile: balanced speed and coverage
settings.register_profile(
    "default",
    max_examples=100,
    deadline=None,  # Disable deadline for slow interpreters
)

# CI profile: more thorough testing
settings.register_profile(
    "ci",
    max_examples=500,
    deadline=None,
    suppress_health_check=[],
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
)

# Dev profile: fast iteration
settings.register_profile(
    "dev",
    max_examples=10,
    deadline=None,
)

# Debug profile: verbose output
settings.register_profile(
    "debug",
    max_examples=10,
    verbosity=Verbosity.verbose,
    deadline=None,
)

settings.load_profile(os.environ.get("HYPOTHESIS_PROFILE", "default"))


class ScriptedRandom:
    """
    randbelow() replacement returning queued offsets.

    Usage:
        def test_rejects(scripted_random):
            rng = scripted_random([5, 11111110, 41])
            gen = CredentialGenerator(randbelow=rng)
    """

    def __init__(self, values):
        self.values = list(values)
        self.calls = []

    def __call__(self, n):
        self.calls.append(n)
        if not self.values:
            raise AssertionError("scripted random source exhausted")
        value = self.values.pop(0)
        assert 0 <= value < n, f"scripted value {value} outside [0, {n})"
        return value


@pytest.fixture
def scripted_random():
    """Factory for scripted random sources."""
    return ScriptedRandom


@pytest.fixture
def device_yaml(tmp_path):
    """Write a device file and return its path."""
    def _write(content: str, name: str = "device.yaml") -> Path:
        path = tmp_path / name
        path.write_text(content)
        return path
    return _write


# Markers for test categorization
def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "compliance: marks tests pinned to published code vectors"
    )
