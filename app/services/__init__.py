"""
Services layer - Business logic goes here.
Keep services focused on one part of the report lifecycle.

DESIGN PRINCIPLE:
- Services contain business logic, NOT routes
- Routes check capabilities; services enforce rules and scope
- Every rule violation is raised as a ReportServiceError subclass
"""
