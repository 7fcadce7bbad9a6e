from enum import Enum


class CrawlState(str, Enum):
    IDLE = "idle"
    CRAWLING = "crawling"
    COMPLETING = "completing"
