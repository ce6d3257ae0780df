import os
import sys

# Make the package importable without installing it.
project_root = os.path.abspath(os.path.join(os.path.dirname(os.path.abspath(__file__)), '../../'))

if project_root not in sys.path:
    sys.path.insert(0, project_root)
