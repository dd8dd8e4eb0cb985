"""
Step actions for flowreplay.

Every recorded step type is replayed by a StepAction registered under that
type. The built-in actions cover the Chrome DevTools Recorder step kinds:

    navigate, close, scroll, setViewport, customStep   (steps.page)
    click, doubleClick, change, hover, keyDown, keyUp  (steps.input)
    waitForElement, waitForExpression                  (steps.wait)

Callers can add or override kinds on their own StepRegistry and pass it to
the ReplayEngine.
"""

from flowreplay.steps.base import StepAction, StepContext
from flowreplay.steps.registry import StepRegistry, build_default_registry, default_registry

__all__ = [
    "StepAction",
    "StepContext",
    "StepRegistry",
    "build_default_registry",
    "default_registry",
]
