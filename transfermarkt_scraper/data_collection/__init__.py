"""
Data Collection Module
Scraper, Resolution Engine und Field Classifier

Note: do not import subpackages here to keep package import side-effect free.
Import needed classes directly from their modules.
"""

__all__: list[str] = []
