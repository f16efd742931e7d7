"""CampusDesk - college records, dashboards and library desk backend"""

__version__ = "1.0.0"
