"""SceneScribe - turn articles and notes into multi-topic explainer videos.

A source document is segmented into topics, each topic gets a narrated
scene script, and each script is rendered into a short video by an
external text-to-video provider.
"""

import logging

__version__ = "0.1.0"

logger = logging.getLogger(__name__)
