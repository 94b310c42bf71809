"""Root conftest.py: ensure the local ldlauncher source takes priority over an installed copy."""
import os
import sys

# Insert the repository root at the beginning of sys.path so that the local
# ldlauncher/ package takes precedence over an installed one.
_repo_root = os.path.dirname(os.path.abspath(__file__))
if _repo_root not in sys.path:
    sys.path.insert(0, _repo_root)
