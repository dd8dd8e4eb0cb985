"""
flowreplay - Replay recorded browser user flows against a live page.

flowreplay takes a user flow recorded with the Chrome DevTools Recorder,
substitutes caller-provided inputs into it and replays it step by step
through Playwright. It provides:
- Parameterized flows (``${name}`` placeholders, optional input_schema)
- Fallback selector resolution (CSS and XPath candidates)
- Asserted events awaited after each step
- Asynchronous launch with pollable task status

Example usage:
    $ flowreplay replay checkout.json -i email=a@b.test --launch
    $ flowreplay schema checkout.json
    $ flowreplay doctor
"""

__version__ = "0.1.0"
__author__ = "flowreplay Contributors"

__all__ = [
    "__version__",
    "__author__",
]
