"""Run the service: python -m creator_credentials"""
import uvicorn

from creator_credentials.config import SERVICE_PORT

if __name__ == "__main__":
    uvicorn.run("creator_credentials.main:app", host="0.0.0.0", port=SERVICE_PORT)
