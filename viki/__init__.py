"""viki - multi-provider chat gateway for the SDD assistant"""

__version__ = "0.1.0"
