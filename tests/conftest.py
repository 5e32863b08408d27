"""pytest configuration shared by all test packages.

Hypothesis profiles:
    default  balanced speed and coverage
    ci       more examples per property
    dev      fast iteration

Select one with the HYPOTHESIS_PROFILE environment variable.
"""

import os

from hypothesis import settings

settings.register_profile(
    "default",
    max_examples=100,
    deadline=None,  # socket and thread setup makes timings noisy
)
settings.register_profile("ci", max_examples=500, deadline=None)
settings.register_profile("dev", max_examples=10, deadline=None)

settings.load_profile(os.environ.get("HYPOTHESIS_PROFILE", "default"))
