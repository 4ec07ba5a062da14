# Pydantic request bodies and response envelopes for the versioned API.
