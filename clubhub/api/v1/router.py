from fastapi import APIRouter
from clubhub.api.v1.endpoints import admin, attendance, auth, classes, events, grades, health, levels, payments

api_router = APIRouter()

api_router.include_router(health.router)

api_router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
api_router.include_router(payments.router, prefix="/payments", tags=["Payments"])
api_router.include_router(attendance.router, prefix="/attendance", tags=["Attendance"])
api_router.include_router(grades.router, prefix="/grades", tags=["Grades"])
api_router.include_router(levels.router, prefix="/levels", tags=["Level Progression"])
api_router.include_router(events.router, prefix="/events", tags=["Events"])
api_router.include_router(classes.router, prefix="/classes", tags=["Classes"])
api_router.include_router(admin.router, prefix="/admin", tags=["Admin"])
