# Service classes behind the routers; SQL and engine calls live here, never in route functions.
