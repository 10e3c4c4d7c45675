# Meatpack Test Suite
#
# Every repository, engine and CLI test runs against both storage backends
# (relational SQLite file and flat JSON blobs); see conftest.py.
#
# Run with: python -m pytest
