"""
Serverless entry point.

The hosting runtime imports `app` from this module; every /api request is
routed here and served by the gateway application.
"""
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent / 'backend-services'))

from caregate import caregate as app
