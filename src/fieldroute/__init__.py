"""Field-service route planner: candidate selection and tour optimization."""

__version__ = "0.1.0"
