"""Status bar blocks that report load, CPU, disk, battery, updates and other system state."""

__version__ = "0.1.0"