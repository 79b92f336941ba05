"""Station directory: schemas, colours and the shared cache."""
