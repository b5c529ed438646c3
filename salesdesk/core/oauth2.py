from fastapi.security import OAuth2PasswordBearer

# Bearer tokens are issued by the login form endpoint
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")
