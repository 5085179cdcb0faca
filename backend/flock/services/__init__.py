# Services package init
"""
Flock Backend — Services Layer
===============================

What:  Business logic between the routes (HTTP) and the database.
How:   Services are stateless singletons. Each method receives the request's
       AsyncSession and the authenticated User, applies the rules and raises
       FlockError subclasses on failure.

Service Inventory:
    - AuthService:          signup, login, current identity
    - PostService:          posts, likes, comments, feeds
    - UserService:          profiles, follow graph, suggestions, profile updates
    - NotificationService:  listing and deleting notifications
    - ImageHost (abstract): image upload/destroy; LocalImageHost stores on disk
"""
