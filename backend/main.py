from fastapi import FastAPI

from static_server import setup_static_serving

app = FastAPI(
    title="Precompressed Static Server",
    description="Serves static documents with precompressed variants and SPA fallback",
    version="1.0.0",
)


@app.get("/api/health")
async def health_check():
    return {"status": "healthy"}


# Static file serving wraps every route, so it is installed last
setup_static_serving(app)
