"""HTTP basic auth for the control and stats routes."""

import os
import secrets
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials

basic_security = HTTPBasic()

API_USERNAME = os.environ.get("HEATMAP_API_USERNAME", "admin")
API_PASSWORD = os.environ.get("HEATMAP_API_PASSWORD", "admin123")


def verify_basic_auth(credentials: HTTPBasicCredentials = Depends(basic_security)):
    username_ok = secrets.compare_digest(credentials.username.encode(), API_USERNAME.encode())
    password_ok = secrets.compare_digest(credentials.password.encode(), API_PASSWORD.encode())
    if not (username_ok and password_ok):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Basic"},
        )
    return credentials.username
