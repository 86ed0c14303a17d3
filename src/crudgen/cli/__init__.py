"""crudgen command line (``crudgen sql | check | generate``)."""
