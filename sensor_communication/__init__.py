# sensor_communication/__init__.py
