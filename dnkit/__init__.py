"""Weight files, softmax, normalization and route layers, and helpers for dreaming, char RNNs and detection."""

__version__ = "0.1.0"
__all__ = ["charrnn", "layers", "nightmare", "utils", "weights", "yolo"]