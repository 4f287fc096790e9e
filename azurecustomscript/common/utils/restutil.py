# Azure Custom Script Extension
#
# Copyright 2018 Microsoft Corporation
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
#

import http.client as httpclient
import os
import re
import time
from urllib.parse import urljoin, urlparse

import azurecustomscript.common.conf as conf
import azurecustomscript.common.logger as logger
from azurecustomscript.common.exception import HttpError
from azurecustomscript.common.version import EXTENSION_NAME, EXTENSION_VERSION

DEFAULT_RETRIES = 6
DELAY_IN_SECONDS = 1

THROTTLE_RETRIES = 25
THROTTLE_DELAY_IN_SECONDS = 1

MAX_REDIRECTS = 10

CHUNK_SIZE = 64 * 1024

REDACTED_TEXT = "<SAS_SIGNATURE>"
SAS_TOKEN_RETRIEVAL_REGEX = re.compile(r'^(https?://[a-zA-Z0-9.].*sig=)([a-zA-Z0-9%-]*)(.*)$')

RETRY_CODES = [
    httpclient.RESET_CONTENT,
    httpclient.PARTIAL_CONTENT,
    httpclient.FORBIDDEN,
    httpclient.INTERNAL_SERVER_ERROR,
    httpclient.NOT_IMPLEMENTED,
    httpclient.BAD_GATEWAY,
    httpclient.SERVICE_UNAVAILABLE,
    httpclient.GATEWAY_TIMEOUT,
    httpclient.INSUFFICIENT_STORAGE,
    429,  # Request Rate Limit Exceeded
]

OK_CODES = [
    httpclient.OK,
    httpclient.CREATED,
    httpclient.ACCEPTED
]

REDIRECT_CODES = [
    httpclient.MOVED_PERMANENTLY,
    httpclient.FOUND,
    httpclient.SEE_OTHER,
    httpclient.TEMPORARY_REDIRECT,
    httpclient.PERMANENT_REDIRECT
]

THROTTLE_CODES = [
    httpclient.FORBIDDEN,
    httpclient.SERVICE_UNAVAILABLE,
    429, # Request Rate Limit Exceeded
]

RETRY_EXCEPTIONS = [
    httpclient.NotConnected,
    httpclient.IncompleteRead,
    httpclient.ImproperConnectionState,
    httpclient.BadStatusLine
]

# http://www.gnu.org/software/wget/manual/html_node/Proxies.html
HTTP_PROXY_ENV = "http_proxy"
HTTPS_PROXY_ENV = "https_proxy"
NO_PROXY_ENV = "no_proxy"

HTTP_USER_AGENT = "{0}/{1}".format(EXTENSION_NAME, EXTENSION_VERSION)


def _compute_delay(retry_attempt=1, delay=DELAY_IN_SECONDS):
    fib = (1, 1)
    for _ in range(retry_attempt):
        fib = (fib[1], fib[0]+fib[1])
    return delay*fib[1]


def _is_retry_status(status, retry_codes=None):
    if retry_codes is None:
        retry_codes = RETRY_CODES
    return status in retry_codes


def _is_retry_exception(e):
    return len([x for x in RETRY_EXCEPTIONS if isinstance(e, x)]) > 0


def _is_throttle_status(status):
    return status in THROTTLE_CODES


def _parse_url(url):
    """
    Parse URL to get the components of the URL broken down to host, port
    :rtype: string, int, bool, string
    """
    o = urlparse(url)
    rel_uri = o.path or "/"
    if o.query:
        rel_uri = "{0}?{1}".format(rel_uri, o.query)
    secure = False
    if o.scheme.lower() == "https":
        secure = True
    return o.hostname, o.port, secure, rel_uri


def get_no_proxy():
    no_proxy = os.environ.get(NO_PROXY_ENV) or os.environ.get(NO_PROXY_ENV.upper())

    if no_proxy:
        no_proxy = [host for host in no_proxy.replace(' ', '').split(',') if host]

    # no_proxy in the proxies argument takes precedence
    return no_proxy


def bypass_proxy(host):
    no_proxy = get_no_proxy()

    if no_proxy:
        for proxy_domain in no_proxy:
            if host.lower().endswith(proxy_domain.lower()):
                return True

    return False


def _get_http_proxy(secure=False):
    # Prefer the configuration settings over environment variables
    host = conf.get_httpproxy_host()
    port = None

    if not host is None:
        port = conf.get_httpproxy_port()

    else:
        http_proxy_env = HTTPS_PROXY_ENV if secure else HTTP_PROXY_ENV
        http_proxy_url = None
        for v in [http_proxy_env, http_proxy_env.upper()]:
            if v in os.environ:
                http_proxy_url = os.environ[v]
                break

        if not http_proxy_url is None:
            host, port, _, _ = _parse_url(http_proxy_url)

    return host, port


def redact_sas_tokens_in_urls(url):
    return SAS_TOKEN_RETRIEVAL_REGEX.sub(r"\1" + REDACTED_TEXT + r"\3", url)


def _http_request(method, host, rel_uri, port=None, data=None, secure=False,
                  headers=None, proxy_host=None, proxy_port=None):

    headers = {} if headers is None else headers
    headers['Connection'] = 'close'

    use_proxy = proxy_host is not None and proxy_port is not None

    if port is None:
        port = 443 if secure else 80

    if 'User-Agent' not in headers:
        headers['User-Agent'] = HTTP_USER_AGENT

    if use_proxy:
        conn_host, conn_port = proxy_host, proxy_port
        scheme = "https" if secure else "http"
        url = "{0}://{1}:{2}{3}".format(scheme, host, port, rel_uri)
    else:
        conn_host, conn_port = host, port
        url = rel_uri

    if secure:
        conn = httpclient.HTTPSConnection(conn_host,
                                          conn_port,
                                          timeout=30)
        if use_proxy:
            conn.set_tunnel(host, port)
            # the request line goes through the tunnel, so it takes the relative uri
            url = rel_uri
    else:
        conn = httpclient.HTTPConnection(conn_host,
                                         conn_port,
                                         timeout=30)

    logger.verbose("HTTP connection [{0}] [{1}] [{2}]",
                   method,
                   redact_sas_tokens_in_urls(url),
                   headers)

    conn.request(method=method, url=url, body=data, headers=headers)
    return conn.getresponse()


def http_request(method,
                 url, data, headers=None,
                 use_proxy=True,
                 max_retry=DEFAULT_RETRIES,
                 retry_codes=None,
                 retry_delay=DELAY_IN_SECONDS):

    if retry_codes is None:
        retry_codes = RETRY_CODES

    host, port, secure, rel_uri = _parse_url(url)
    if not host:
        raise HttpError("Invalid URL: {0}".format(redact_sas_tokens_in_urls(url)))

    # Use the HTTP(S) proxy
    proxy_host, proxy_port = (None, None)
    if use_proxy and not bypass_proxy(host):
        proxy_host, proxy_port = _get_http_proxy(secure=secure)

        if proxy_host or proxy_port:
            logger.verbose("HTTP proxy: [{0}:{1}]", proxy_host, proxy_port)

    msg = ''
    attempt = 0
    delay = 0
    was_throttled = False
    status = None

    while attempt < max_retry:
        if attempt > 0:
            # Compute the request delay
            # -- Use a fixed delay if the server ever rate-throttles the request
            #    (with a safe, minimum number of retry attempts)
            # -- Otherwise, compute a delay that is the product of the next
            #    item in the Fibonacci series and the initial delay value
            delay = THROTTLE_DELAY_IN_SECONDS \
                        if was_throttled \
                        else _compute_delay(retry_attempt=attempt,
                                            delay=retry_delay)

            logger.verbose("[HTTP Retry] "
                           "Attempt {0} of {1} will delay {2} seconds: {3}",
                           attempt+1,
                           max_retry,
                           delay,
                           msg)

            time.sleep(delay)

        attempt += 1

        try:
            resp = _http_request(method,
                                 host,
                                 rel_uri,
                                 port=port,
                                 data=data,
                                 secure=secure,
                                 headers=headers,
                                 proxy_host=proxy_host,
                                 proxy_port=proxy_port)
            logger.verbose("[HTTP Response] Status Code {0}", resp.status)
            status = resp.status

            if request_failed(resp) and resp.status not in REDIRECT_CODES:
                if _is_retry_status(resp.status, retry_codes=retry_codes):
                    msg = '[HTTP Retry] {0} {1} -- Status Code {2}'.format(method, redact_sas_tokens_in_urls(url),
                                                                           resp.status)
                    # Note if throttled and ensure a safe, minimum number of
                    # retry attempts
                    if _is_throttle_status(resp.status):
                        was_throttled = True
                        max_retry = max(max_retry, THROTTLE_RETRIES)
                    continue

            return resp

        except httpclient.HTTPException as e:
            msg = '[HTTP Failed] {0} {1} -- HttpException {2}'.format(method, redact_sas_tokens_in_urls(url), e)
            if _is_retry_exception(e):
                continue
            break

        except IOError as e:
            msg = '[HTTP Failed] {0} {1} -- IOError {2}'.format(method, redact_sas_tokens_in_urls(url), e)
            continue

    raise HttpError("{0} -- {1} attempts made".format(msg, attempt), http_status=status)


def http_get(url,
             headers=None,
             use_proxy=True,
             max_retry=DEFAULT_RETRIES,
             retry_codes=None,
             retry_delay=DELAY_IN_SECONDS):

    if retry_codes is None:
        retry_codes = RETRY_CODES
    return http_request("GET",
                        url, None, headers=headers,
                        use_proxy=use_proxy,
                        max_retry=max_retry,
                        retry_codes=retry_codes,
                        retry_delay=retry_delay)


def request_failed(resp, ok_codes=None):
    if ok_codes is None:
        ok_codes = OK_CODES
    return not request_succeeded(resp, ok_codes=ok_codes)


def request_succeeded(resp, ok_codes=None):
    if ok_codes is None:
        ok_codes = OK_CODES
    return resp is not None and resp.status in ok_codes


def read_response_error(resp):
    result = ''
    if resp is not None:
        try:
            result = "[HTTP Failed] [{0}: {1}] {2}".format(
                        resp.status,
                        resp.reason,
                        resp.read())

            # this result string is passed upstream to several methods
            # which do a raise HttpError() or a format() of some kind;
            # as a result it cannot have any unicode characters
            result = result\
                .encode(encoding='ascii', errors='ignore')\
                .decode(encoding='ascii', errors='ignore')
        except Exception as e:
            logger.warn("Failed to read HTTP response error: {0}", e)
    return result


def download_file(url, destination, max_retry=DEFAULT_RETRIES, retry_delay=DELAY_IN_SECONDS):
    """
    Downloads 'url' into the file 'destination', following redirects. Returns the number of bytes written.
    """
    current_url = url
    for _ in range(MAX_REDIRECTS + 1):
        resp = http_get(current_url, max_retry=max_retry, retry_delay=retry_delay)

        if resp.status in REDIRECT_CODES:
            location = resp.getheader("Location")
            if not location:
                raise HttpError("Redirect without a Location header from {0}".format(
                    redact_sas_tokens_in_urls(current_url)), http_status=resp.status)
            current_url = urljoin(current_url, location)
            continue

        if request_failed(resp):
            raise HttpError(read_response_error(resp), http_status=resp.status)

        size = 0
        with open(destination, "wb") as out_file:
            while True:
                chunk = resp.read(CHUNK_SIZE)
                if not chunk:
                    break
                out_file.write(chunk)
                size += len(chunk)
        return size

    raise HttpError("Too many redirects downloading {0}".format(redact_sas_tokens_in_urls(url)))
