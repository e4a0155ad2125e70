"""Shared fixtures for feeds tests."""

import pytest

RSS_SAMPLE = b"""<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0" xmlns:media="http://search.yahoo.com/mrss/">
  <channel>
    <title>Test News</title>
    <link>https://news.example.com</link>
    <description>Local news</description>
    <item>
      <title>Flooding closes roads in Perry County</title>
      <link>https://news.example.com/flooding?utm_source=rss</link>
      <guid isPermaLink="false">news-1001</guid>
      <pubDate>Mon, 02 Jun 2025 14:30:00 GMT</pubDate>
      <description><![CDATA[<p>Crews in <b>Hazard</b> responded overnight.</p>]]></description>
      <author>desk@news.example.com (Staff)</author>
      <enclosure url="https://news.example.com/img/flood.jpg" type="image/jpeg" length="1234"/>
    </item>
    <item>
      <title>Council approves budget</title>
      <link>https://news.example.com/budget</link>
      <description>The council voted 5-2.</description>
      <media:thumbnail url="https://news.example.com/img/budget-thumb.jpg"/>
    </item>
    <item>
      <title>Third story</title>
      <link>https://news.example.com/third</link>
      <description><![CDATA[Body <img src="https://news.example.com/img/third.png"/> text]]></description>
    </item>
  </channel>
</rss>
"""

ATOM_SAMPLE = b"""<?xml version="1.0" encoding="utf-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
  <title>Atom Test</title>
  <id>urn:uuid:feed</id>
  <updated>2025-06-03T09:00:00Z</updated>
  <entry>
    <title>Knott County schools reopen</title>
    <id>tag:news.example.com,2025:42</id>
    <updated>2025-06-03T09:00:00Z</updated>
    <summary>Classes resume Monday.</summary>
    <content type="html">&lt;p&gt;Classes resume Monday.&lt;/p&gt;</content>
  </entry>
</feed>
"""


@pytest.fixture
def rss_payload() -> bytes:
    return RSS_SAMPLE


@pytest.fixture
def atom_payload() -> bytes:
    return ATOM_SAMPLE
