"""
Application Layer

Orchestrates the playback domain and its collaborators.

Structure:
- services/: The playback state machine and its supporting components
- interfaces/: Port interfaces for infrastructure adapters
"""
