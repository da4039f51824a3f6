"""
Survey Linker - turn survey data sheets into DynetML networks
"""

__version__ = "0.1.0"
