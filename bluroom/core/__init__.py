"""
Core domain package.

This package contains the discovery logic which should be independent of any
UI layer: the known-device store, the discovery orchestrator and the group
topology builder.

We intentionally keep exports minimal; consumers should usually import from the
specific module they need (e.g. `bluroom.core.topology`).
"""
