"""
Root pytest configuration.
Settings are read at import time, so the test environment must be in place
before anything from the application is imported.
"""
import os

os.environ["TESTING"] = "True"
os.environ["DEBUG"] = "False"
os.environ.setdefault("LOG_LEVEL", "WARNING")
