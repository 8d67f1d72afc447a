"""mtv-catalog: quota-aware YouTube catalog builder for Tamil music videos."""

__version__ = "1.0.0"
