"""wpstack - WordPress 单机部署流水线"""

__version__ = "0.3.0"
