import modal

# Modal setup
app = modal.App("image-enhancer-proxy")

# Volume for uploads and enhanced results (swept by cleanup_expired)
temp_volume = modal.Volume.from_name("enhancer-temp", create_if_missing=True)

# Lightweight image, all heavy lifting happens at the remote provider
web_image = (
    modal.Image.debian_slim(python_version="3.11")
    .pip_install([
        "fastapi==0.115.6",
        "pydantic==2.10.4",
        "python-multipart==0.0.20",
        "requests==2.32.3",
    ])
    .env({"ENHANCER_TEMP_DIR": "/temp"})
    .add_local_python_source("core", "utils")
)


# FastAPI web service
# A single container so every result is served from the container that wrote it
@app.function(
    image=web_image,
    secrets=[modal.Secret.from_name("enhancer-auth")],
    volumes={"/temp": temp_volume},
    timeout=600,
    max_containers=1,
)
@modal.concurrent(max_inputs=100)
@modal.asgi_app()
def fastapi_app():
    import logging

    from core.api import create_app

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    return create_app()


# Auto cleanup function - runs every 30 minutes to delete expired files
@app.function(
    image=web_image,
    schedule=modal.Cron("*/30 * * * *"),
    timeout=300,  # 5 minute timeout to prevent hanging
    memory=512,
    volumes={"/temp": temp_volume},
)
def cleanup_expired():
    """Delete uploads and results older than the retention window"""
    import logging

    from core.config import Settings
    from utils.cleanup import cleanup_expired_files

    logging.basicConfig(level=logging.INFO)
    settings = Settings.from_env()

    # Reload volume to get latest state
    temp_volume.reload()
    result = cleanup_expired_files(settings.temp_dir, max_age_seconds=settings.retention_seconds)

    # Only commit if we actually deleted files
    if result["deleted"] > 0:
        temp_volume.commit()

    return f"Processed {result['processed']} files, deleted {result['deleted']} expired files"
