"""Constants for the Electricity Spot Prices helper modules."""

# Time constants
HOURS_IN_DAY = 24
SPRING_FORWARD_HOURS = 23
