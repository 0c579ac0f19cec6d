# Print a greeting for the name below.
name = "World"
