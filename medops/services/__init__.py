"""Front-desk services built on the database and the doctor link."""
