# Services package init
"""
VideoTube Backend — Services Layer
====================================

What:  Business logic between routes (HTTP) and the database / remote store.

Service Inventory:
    - RemoteStore (abstract): Interface for remote object storage
    - CloudinaryStore: RemoteStore backed by the Cloudinary SDK
    - FileStager: Writes multipart uploads to the local temp directory
    - UploadHandoff: Staged file → remote store, local copy always deleted
    - UserService: Registration, login/logout, token refresh, watch history
    - VideoService: Publish, list and fetch videos

Keep this module free of imports: config.py imports store_base from here.
"""
