"""
Pinch Drag - Touchless Object Manipulation
===========================================

Grab, drag and release on-screen objects with a thumb/index pinch,
driven by MediaPipe hand landmarks from a camera feed.

Modules:
    - core: Shared types, event bus and the throttled frame scheduler
    - capture: Camera frame acquisition
    - detection: MediaPipe hand landmark source
    - recognition: Pinch gesture classification
    - control: Object registry and grab state machine
    - utils: Configuration, logging, performance, visualization
"""

__version__ = "1.0.0"
__author__ = "HCI Team"
