# -*- coding: utf-8 -*-
# Copyright 2015 Red Hat, Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
#     Unless required by applicable law or agreed to in writing, software
#     distributed under the License is distributed on an "AS IS" BASIS,
#     WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
#     See the License for the specific language governing permissions and
#     limitations under the License.

"""Paged results shared by all services."""

from gcloud_client import constants


class Page(object):
    """A single page of paged results.

    Pages are built from a fetch function with the signature

        fetch(page_size, page_token) -> (items, next_page_token)

    where a page_token of None requests the first page and a returned
    next_page_token of None means there are no more pages.

    :ivar items: The items in this page.
    :vartype items: list
    """

    def __init__(self, fetch, page_size, items, next_page_token=None):
        self._fetch = fetch
        self._page_size = page_size
        self._next_page_token = next_page_token
        self.items = items

    @classmethod
    def first(cls, fetch, page_size=constants.DEFAULT_PAGE_SIZE):
        """Fetch the first page."""
        items, next_page_token = fetch(page_size, None)
        return cls(fetch, page_size, items, next_page_token)

    @property
    def is_last(self):
        """Whether this is the last page of results."""
        return self._next_page_token is None

    def next(self, page_size=None):
        """Move to the next page.

        :param page_size: Maximum number of items in the next page.  Defaults
                          to the page size of this page.
        :type page_size: int
        :returns: The next page, or None if this is the last page.
        :rtype: Page or NoneType
        """
        if self.is_last:
            return None
        page_size = page_size or self._page_size
        items, next_page_token = self._fetch(page_size,
                                             self._next_page_token)
        return type(self)(self._fetch, page_size, items, next_page_token)

    def __iter__(self):
        return iter(self.items)

    def __len__(self):
        return len(self.items)

    def __repr__(self):
        return '%s(items=%s, is_last=%s)' % (self.__class__.__name__,
                                             len(self.items), self.is_last)


class StreamFromPages(object):
    """Lazy iterator over the items of all pages.

    The first page is requested when iteration starts, and every following
    page only once the items of the previous one have been consumed.  Calling
    cancel() stops the iteration without fetching any further page.
    """

    def __init__(self, first_page_fn, page_size=constants.DEFAULT_PAGE_SIZE):
        """Initialize the stream.

        :param first_page_fn: Callable receiving a page size and returning
                              the first Page.
        :param page_size: Page size used for every request.
        :type page_size: int
        """
        self._first_page_fn = first_page_fn
        self._page_size = page_size
        self._page = None
        self._items = None
        self.cancelled = False
        self.pages_fetched = 0

    def cancel(self):
        """Stop the iteration.  Pages are no longer fetched."""
        self.cancelled = True

    close = cancel

    def __iter__(self):
        return self

    def __next__(self):
        while not self.cancelled:
            if self._items is not None:
                item = next(self._items, _END)
                if item is not _END:
                    return item
                if self._page.is_last:
                    break

            if self._page is None:
                self._page = self._first_page_fn(self._page_size)
            else:
                self._page = self._page.next(self._page_size)
            self.pages_fetched += 1
            self._items = iter(self._page.items)
        raise StopIteration


_END = object()
