"""Domain services. Routes stay thin and delegate here; every function takes a SQLAlchemy Session."""
