import pytest
import httpx
from link_resolver.adapters.flickr import select_best_size
from link_resolver.exceptions import AmbiguousRedirectError, APIError, PlatformNotConfiguredError

ALBUM_URL = 'https://www.flickr.com/photos/12345678@N05/albums/72157691234567890'


def _source(photo_id):
    return f'https://live.staticflickr.com/65535/{photo_id}_b.jpg'


def flickr_api(album_pages=None, failing_photos=()):
    """Fake Flickr REST API serving photosets.getPhotos and photos.getSizes"""
    album_pages = album_pages or [['1']]
    calls = []

    def handler(request):
        params = request.url.params
        calls.append(dict(params))
        assert request.url.host == 'api.flickr.com'
        assert params['api_key'] == 'test_flickr_key_123'

        if params['method'] == 'flickr.photosets.getPhotos':
            page = int(params['page'])
            return httpx.Response(200, json={'stat': 'ok', 'photoset': {
                'id': params['photoset_id'],
                'page': page,
                'pages': len(album_pages),
                'photo': [{'id': photo_id} for photo_id in album_pages[page - 1]],
            }})

        if params['method'] == 'flickr.photos.getSizes':
            photo_id = params['photo_id']
            if photo_id in failing_photos:
                return httpx.Response(200, json={'stat': 'fail', 'code': 1, 'message': 'Photo not found'})
            return httpx.Response(200, json={'stat': 'ok', 'sizes': {'size': [
                {'label': 'Small', 'width': '240', 'height': '180', 'source': f'https://small/{photo_id}.jpg'},
                {'label': 'Large', 'width': 1024, 'height': 768, 'source': _source(photo_id)},
            ]}})

        raise AssertionError(f"Unexpected method {params['method']}")

    handler.calls = calls
    return handler


@pytest.mark.unit
def test_select_best_size():
    """Test that a size wins when it is strictly wider or strictly taller"""
    sizes = [
        {'width': '100', 'height': '100', 'source': 'a'},
        {'width': '400', 'height': '300', 'source': 'b'},
        {'width': '200', 'height': '900', 'source': 'c'},
    ]
    assert select_best_size(sizes)['source'] == 'c'


@pytest.mark.unit
def test_select_best_size_edge_cases():
    """Test empty lists, ties and unparsable dimensions"""
    assert select_best_size([]) is None

    ties = [{'width': 500, 'height': 500, 'source': 'first'}, {'width': 500, 'height': 500, 'source': 'second'}]
    assert select_best_size(ties)['source'] == 'first'

    odd = [{'width': 'n/a', 'height': None, 'source': 'first'}, {'width': '10', 'height': '10', 'source': 'second'}]
    assert select_best_size(odd)['source'] == 'second'


@pytest.mark.unit
@pytest.mark.asyncio
async def test_photo_resolution(make_resolver, sample_urls):
    """Test that a photo resolves to its largest size"""
    api = flickr_api()

    async with make_resolver(api) as resolver:
        links = await resolver.resolve(sample_urls['flickr_photo'])

    assert links == {_source('40071331883'): ''}
    assert api.calls[0]['method'] == 'flickr.photos.getSizes'
    assert api.calls[0]['format'] == 'json'
    assert api.calls[0]['nojsoncallback'] == '1'


@pytest.mark.unit
@pytest.mark.asyncio
async def test_photo_api_failure(make_resolver, sample_urls):
    """Test that a failed API status is reported as an API error"""
    async with make_resolver(flickr_api(failing_photos=('40071331883',))) as resolver:
        with pytest.raises(APIError) as exc_info:
            await resolver.resolve(sample_urls['flickr_photo'])

    assert "Photo not found" in exc_info.value.message


@pytest.mark.unit
@pytest.mark.asyncio
async def test_album_pagination(make_resolver):
    """Test that every page of an album is listed and resolved"""
    api = flickr_api(album_pages=[['1', '2'], ['3']])

    async with make_resolver(api) as resolver:
        links = await resolver.resolve(ALBUM_URL)

    assert links == {_source('1'): '', _source('2'): '', _source('3'): ''}
    listing_calls = [call for call in api.calls if call['method'] == 'flickr.photosets.getPhotos']
    assert [call['page'] for call in listing_calls] == ['1', '2']
    assert all(call['photoset_id'] == '72157691234567890' for call in listing_calls)
    assert all(call['per_page'] == '500' for call in listing_calls)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_album_skips_failing_photos(make_resolver):
    """Test that one broken photo does not fail the album"""
    api = flickr_api(album_pages=[['1', '2', '3']], failing_photos=('2',))

    async with make_resolver(api) as resolver:
        links = await resolver.resolve('https://flickr.com/photos/someone/sets/72157691234567890/')

    assert links == {_source('1'): '', _source('3'): ''}


@pytest.mark.unit
@pytest.mark.asyncio
async def test_short_link_matches_album_resolution(make_resolver, sample_urls):
    """Test that a short link resolves exactly like the album it points to"""
    api = flickr_api(album_pages=[['1', '2']])

    def handler(request):
        if request.url.host == 'flic.kr':
            return httpx.Response(301, headers={'Location': ALBUM_URL})
        if request.url.host == 'www.flickr.com':
            return httpx.Response(200, text='<html>album</html>')
        return api(request)

    async with make_resolver(handler) as resolver:
        expanded = await resolver.resolve(sample_urls['flickr_album_short'])
        direct = await resolver.resolve(ALBUM_URL)

    assert expanded == direct
    assert expanded == {_source('1'): '', _source('2'): ''}


@pytest.mark.unit
@pytest.mark.asyncio
async def test_short_link_to_non_album(make_resolver, sample_urls):
    """Test that a short link landing anywhere but an album is rejected"""
    def handler(request):
        if request.url.host == 'flic.kr':
            return httpx.Response(302, headers={'Location': 'https://www.flickr.com/photos/12345678@N05/'})
        return httpx.Response(200, text='<html>profile</html>')

    async with make_resolver(handler) as resolver:
        with pytest.raises(AmbiguousRedirectError) as exc_info:
            await resolver.resolve(sample_urls['flickr_album_short'])

    assert exc_info.value.details['final_url'] == 'https://www.flickr.com/photos/12345678@N05/'


@pytest.mark.unit
@pytest.mark.asyncio
async def test_flickr_without_api_key(config, make_resolver, sample_urls):
    """Test that every flickr variant fails before any request without a key"""
    config.flickr_api_key = None

    async with make_resolver() as resolver:
        for key in ('flickr_photo', 'flickr_album', 'flickr_album_short'):
            assert not resolver.is_platform_configured(key)
            with pytest.raises(PlatformNotConfiguredError):
                await resolver.resolve(sample_urls[key])
