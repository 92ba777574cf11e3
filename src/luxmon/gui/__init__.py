"""Qt integration for luxmon.

:class:`~luxmon.gui.tick_driver.TickDriver` runs the pipeline tick on a
``QTimer`` and re-emits status and conversion events as Qt signals; views
attach to those signals and read the pipeline buffers. :mod:`application`
hosts the console entry point.
"""
