"""
Services module - capture, analysis, storage and the session state machine.
"""
