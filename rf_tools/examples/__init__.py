# rf_tools/examples/__init__.py
