"""
Domain models — quotes, news, analytics snapshots, scores and recommendations.

All models are frozen pydantic ``BaseModel`` subclasses.
"""
