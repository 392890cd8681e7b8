"""Test configuration — make `src` importable without installing the project."""
import sys
from pathlib import Path

# Project root on the path so `from src.xxx import` works from a plain checkout
sys.path.insert(0, str(Path(__file__).parent.parent))
