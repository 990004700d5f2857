from app.api.main import app

if __name__ == "__main__":
    import os
    import uvicorn
    host = os.getenv("MEDIATOR_HOST", "0.0.0.0")
    port = int(os.getenv("MEDIATOR_PORT", "8080"))
    uvicorn.run(app, host=host, port=port)
