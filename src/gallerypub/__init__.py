"""
gallerypub - personal photo gallery publishing tool

Publishes a local folder of pictures as a web gallery:
- Square WEBP thumbnails cropped from the center of each picture
- Short reference codes stamped onto the full size images
- One metadata record per image in DuckDB
- Originals and thumbnails uploaded to Google Cloud Storage under galleries/<name>/
"""

__version__ = "0.1.0"
__author__ = "gallerypub"
__description__ = "Personal photo gallery publishing tool"
