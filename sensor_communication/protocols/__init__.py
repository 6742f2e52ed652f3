# sensor_communication/protocols/__init__.py
from sensor_communication.protocols.sensor_protocol import SensorProtocol
from sensor_communication.protocols.anritsu_protocol import AnritsuProtocol

__all__ = ['SensorProtocol', 'AnritsuProtocol']
