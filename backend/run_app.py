import os
import sys
import uvicorn

if __name__ == "__main__":
    # Load .env bundled next to a frozen build before settings are read
    if getattr(sys, 'frozen', False):
        bundle_dir = getattr(sys, '_MEIPASS', os.path.dirname(os.path.abspath(__file__)))
        env_path = os.path.join(bundle_dir, '.env')
        if os.path.exists(env_path):
            from dotenv import load_dotenv
            load_dotenv(env_path)

    from composer.core.config import settings

    port = int(os.environ.get("PORT", "8000"))
    print(f"Starting {settings.PROJECT_NAME} on port {port}...")
    uvicorn.run("composer.main:app", host="0.0.0.0", port=port, log_level=settings.LOG_LEVEL.lower(), reload=False)
