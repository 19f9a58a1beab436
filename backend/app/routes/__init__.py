# Routes package init
"""
VideoTube Backend — API Routes Package
========================================

Route Inventory:
    - users.py:   POST /api/v1/users/register        (multipart, avatar + coverImage)
                  POST /api/v1/users/login
                  POST /api/v1/users/logout          (auth)
                  POST /api/v1/users/refresh-token
                  GET  /api/v1/users/current-user    (auth)
    - videos.py:  POST /api/v1/videos                (auth, multipart videoFile + thumbnail)
                  GET  /api/v1/videos                (page/limit pagination)
                  GET  /api/v1/videos/{id}
    - health.py:  GET  /health

Routes stay thin: stage files, call a service, wrap the result in ApiResponse.
"""
