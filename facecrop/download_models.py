import argparse
import bz2
import logging
import os
import urllib.request

from .core.model_loader import MODEL_FILENAMES

logger = logging.getLogger(__name__)

# dlib model files, published bz2-compressed
MODEL_FILES = {
    filename: f'http://dlib.net/files/{filename}.bz2'
    for filename in MODEL_FILENAMES.values()
}

def download_file(url, filename):
    """Download a bz2 archive and write it decompressed to filename."""
    archive = filename + '.bz2'
    logger.info(f"Downloading {url}...")
    urllib.request.urlretrieve(url, archive)
    try:
        with bz2.open(archive, 'rb') as src, open(filename, 'wb') as dst:
            while True:
                chunk = src.read(1 << 20)
                if not chunk:
                    break
                dst.write(chunk)
    finally:
        os.remove(archive)
    logger.info(f"Downloaded {filename}")

def main(dest='models'):
    # Create models directory if it doesn't exist
    os.makedirs(dest, exist_ok=True)

    # Download each model file
    for filename, url in MODEL_FILES.items():
        filepath = os.path.join(dest, filename)
        if os.path.exists(filepath):
            logger.info(f"{filepath} already present, skipping")
            continue
        try:
            download_file(url, filepath)
        except (OSError, EOFError) as e:
            if os.path.exists(filepath):
                os.remove(filepath)
            logger.error(f"Error downloading {filename}: {str(e)}")
            logger.error(
                "Please download the model files manually from http://dlib.net/files/, "
                f"decompress them and place them in the '{dest}' directory:"
            )
            for name in MODEL_FILES:
                logger.error(f"- {name}")
            return False
    return True

def cli(argv=None):
    from .config import settings

    parser = argparse.ArgumentParser(description="Download the dlib face models")
    parser.add_argument('--dest', default=settings.MODELS_DIR, help="target directory")
    args = parser.parse_args(argv)
    logging.basicConfig(level=settings.LOG_LEVEL)
    return 0 if main(args.dest) else 1

if __name__ == "__main__":
    raise SystemExit(cli())
