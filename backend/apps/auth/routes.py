"""Auth routes - registers all auth endpoints."""

from fastapi import APIRouter

from apps.auth.handlers import login, logout, restore, signup

router = APIRouter(prefix="/auth", tags=["Auth"])

# POST /auth/signup - Create account and profile
router.post("/signup")(signup)

# POST /auth/login - Email/password sign-in
router.post("/login")(login)

# POST /auth/logout - Drop the session's sign-in and listeners
router.post("/logout")(logout)

# POST /auth/restore - Resume with a Firebase ID token
router.post("/restore")(restore)
