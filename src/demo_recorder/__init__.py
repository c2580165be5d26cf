"""
Data Hub Demo Recorder

Scripted browser walkthrough that produces the Data Hub demo video:
- Continuous screen-recorded take of the app's key features
- ffmpeg post-processing into web-ready MP4/WebM plus a poster frame
- One-shot pipeline that checks prerequisites and runs every stage
"""

__version__ = "0.1.0"
