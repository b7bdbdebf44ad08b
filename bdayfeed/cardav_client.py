"""
CardDAV client for fetching contacts with birthdays
"""

import logging
import xml.etree.ElementTree as ET
from typing import List, Optional

import requests
from requests.auth import HTTPBasicAuth, HTTPDigestAuth

from bdayfeed.birthday import Birthday, parse_birthdays

logger = logging.getLogger(__name__)

DAV_NS = 'DAV:'
CARDDAV_NS = 'urn:ietf:params:xml:ns:carddav'

BIRTHDAY_QUERY_BODY = '''<?xml version="1.0" encoding="utf-8" ?>
<card:addressbook-query xmlns:d="DAV:" xmlns:card="urn:ietf:params:xml:ns:carddav">
  <d:prop>
    <d:getetag/>
    <card:address-data>
      <card:prop name="N"/>
      <card:prop name="FN"/>
      <card:prop name="BDAY"/>
    </card:address-data>
  </d:prop>
</card:addressbook-query>'''


class CardDAVError(Exception):
    """Raised when an address book cannot be fetched"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class CardDAVClient:
    """Client for querying a single CardDAV address book"""

    def __init__(self, url: str, username: str, password: str, timeout: float = 30):
        self.url = url
        self.username = username
        self.timeout = timeout

        # Basic first, Digest if the server asks for it
        self.basic_auth = HTTPBasicAuth(username, password)
        self.digest_auth = HTTPDigestAuth(username, password)
        self.auth = self.basic_auth

    def _report(self, auth) -> requests.Response:
        headers = {
            'Content-Type': 'application/xml; charset=utf-8',
            'Depth': '1'
        }
        return requests.request('REPORT', self.url, auth=auth, headers=headers,
                                data=BIRTHDAY_QUERY_BODY.encode('utf-8'), timeout=self.timeout)

    def _query(self) -> requests.Response:
        """Run the addressbook-query REPORT, falling back to Digest auth on 401"""
        logger.debug(f"Querying address book {self.url} as {self.username}")
        try:
            response = self._report(self.auth)
            if response.status_code == 401 and self.auth is self.basic_auth:
                logger.info("Basic auth failed, trying Digest authentication...")
                response = self._report(self.digest_auth)
                if response.status_code != 401:
                    self.auth = self.digest_auth
        except requests.exceptions.RequestException as e:
            logger.error(f"Connection error: {e}")
            raise CardDAVError(f"failed to make request: {e}") from e

        if response.status_code != 207:
            logger.error(f"Unexpected status from {self.url}: {response.status_code}")
            logger.debug(f"Response: {response.text[:500]}")
            raise CardDAVError(f"unexpected status: {response.status_code}", response.status_code)

        return response

    def get_vcards(self) -> List[str]:
        """Fetch the raw vCard text of every contact in the address book"""
        response = self._query()
        logger.debug(f"Raw XML response preview: {response.text[:500]}...")
        vcards = extract_address_data(response.content)
        logger.info(f"Fetched {len(vcards)} vCards from {self.url}")
        return vcards

    def get_birthdays(self) -> List[Birthday]:
        """Fetch all contacts and keep the ones with a usable birthday"""
        birthdays = parse_birthdays(self.get_vcards())
        logger.info(f"Found {len(birthdays)} contacts with birthdays in {self.url}")
        return birthdays


def extract_address_data(xml_response: bytes) -> List[str]:
    """Collect address-data values from a multistatus response, in document order"""
    try:
        root = ET.fromstring(xml_response)
    except ET.ParseError as e:
        raise CardDAVError(f"failed to parse XML response: {e}") from e

    vcards = []
    for response in root.iter(f'{{{DAV_NS}}}response'):
        for propstat in response.findall(f'{{{DAV_NS}}}propstat'):
            for prop in propstat.findall(f'{{{DAV_NS}}}prop'):
                address_data = prop.find(f'{{{CARDDAV_NS}}}address-data')
                if address_data is not None and address_data.text:
                    vcards.append(address_data.text)
    return vcards
